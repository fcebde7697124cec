"""
Rental Mortgage Planner.
"""
