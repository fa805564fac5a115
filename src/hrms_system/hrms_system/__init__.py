"""HRMS package.

This package is organized by feature modules (tasks, employees, leaves, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
