# src/rallyrank/__init__.py

"""RallyRank: relative skill ratings for doubles tennis."""
