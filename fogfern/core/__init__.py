"""
Core utilities shared across FogFern: exceptions, logging, validators,
paths and the location provider interface.
"""
