"""m3ukit - IPTV M3U/EXTM3U playlist parsing and content classification."""
__version__ = "1.0.0"
