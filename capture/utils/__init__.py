"""Capture helper functions"""
