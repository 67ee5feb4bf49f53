"""
FocusFlow package.

Three core tasks, planned time blocks, focus/energy logs and AI weekly
summaries on top of a local record store.
"""
import logging

# Applications using this package configure their own logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

VERSION = "0.1.0"
