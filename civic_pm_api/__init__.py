"""
PURPOSE: FastAPI REST API for the civic project-management tool - projects, RAID registers,
         schedules and notifications for regional councils
SRP and DRY check: Pass - package root only exposes the version string
"""
__version__ = "1.0.0"
