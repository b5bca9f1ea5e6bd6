"""
consolesync: data synchronization layer for the inspection administrative console.

Resource clients, the service-order normalization pipeline, attachment
uploads and the screen-side caches that sit between the console and its API.
"""

__version__ = "0.1.0"
