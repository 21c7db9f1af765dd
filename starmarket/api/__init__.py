"""
HTTP API for driving a simulation.
"""
