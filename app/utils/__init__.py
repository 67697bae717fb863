"""
app/utils package marker.
"""
