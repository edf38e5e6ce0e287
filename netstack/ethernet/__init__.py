"""Ethernet II frames and raw access to network interfaces."""