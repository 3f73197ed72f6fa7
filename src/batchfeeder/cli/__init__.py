"""
BatchFeeder command-line interface.
"""
