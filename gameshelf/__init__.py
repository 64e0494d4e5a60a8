"""Gameshelf: REST backend for a video-game collection and wishlist tracker."""

__version__ = "0.1.0"
