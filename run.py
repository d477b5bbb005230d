#!/usr/bin/env python3
"""
SGC Proofreader - Launcher
==========================
Start the local server from a source checkout and open the review page.

Usage:
    python run.py [--no-browser]
    python -m proofreader
"""
import os
import sys
import threading
import webbrowser
from pathlib import Path

# Run from a checkout without installing; keep the database next to this file
package_dir = Path(__file__).resolve().parent
if str(package_dir) not in sys.path:
    sys.path.insert(0, str(package_dir))
os.environ.setdefault('PROOFREADER_APP_DIR', str(package_dir))


def main():
    from proofreader.app import run_server
    from proofreader.config import config

    if '--no-browser' not in sys.argv[1:]:
        url = f"http://{config.server.host}:{config.server.port}"
        # Give the server a moment to bind before the browser asks for the page
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    print(f"Data directory: {os.environ['PROOFREADER_APP_DIR']} (Ctrl+C to stop)")
    run_server()


if __name__ == '__main__':
    main()
