"""Plugins shipped with streetgrid."""
