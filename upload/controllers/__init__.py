"""Upload controllers"""
