"""Upload implementations"""
