"""Addresses, protocol numbers, checksums, checksum offload, packet buffers and buffer pools."""