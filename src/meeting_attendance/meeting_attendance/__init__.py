"""Meeting Attendance package.

Organized by feature modules (meetings, attendance, approvals, dashboard, ...)
with a thin Flask controller layer over service/repository layers.
"""
