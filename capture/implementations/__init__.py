"""Capture backend implementations"""
