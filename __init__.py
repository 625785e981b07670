"""
Bear Tracker application.

A FastAPI-powered tool for following travelling bears around the world:
members of the public report sightings by city and country, and each bear's
journey is drawn on an interactive map.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""
