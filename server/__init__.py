"""
Server modules for Bear Tracker application.

This package contains FastAPI router modules for pages, sighting submission,
administration and server-sent event broadcasting.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""
