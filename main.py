#!/usr/bin/env python3
"""m3ukit - IPTV playlist parser and analyzer."""
from m3ukit.cli import main


if __name__ == "__main__":
    main()
