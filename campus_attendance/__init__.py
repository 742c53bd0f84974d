"""Attendance analytics with query caching for a two-campus college."""
