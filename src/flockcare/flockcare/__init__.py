"""Flockcare package.

Attendance governance for a pastoral care hierarchy, organized by feature
modules (hierarchy, attendance, risk, ...) with a thin Flask controller layer
over service/repository layers.
"""
