"""Building blocks for a user-space network stack: addresses, checksums, buffers, Ethernet and ICMP."""

__version__ = "0.1.0"