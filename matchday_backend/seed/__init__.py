# __init__.py
# Imports all seed functions for easy batch seeding.

from .seed_clubs import seed_clubs
from .seed_league_config import seed_league_config
