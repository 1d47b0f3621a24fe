"""Outlet directory data loading."""
