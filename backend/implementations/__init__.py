"""Remote storage implementations"""
