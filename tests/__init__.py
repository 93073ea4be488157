"""
Test suite for the Sensor Relay system.
"""
