import sys
import os

# Project root on sys.path so tests import the top-level modules ('settings', 'errors', 'cli') and packages ('ingest', 'storage', ...)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
