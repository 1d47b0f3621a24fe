"""Outlet queue admission and service-transition backend."""
