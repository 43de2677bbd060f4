"""Logging, input validation and unit conversion helpers"""
