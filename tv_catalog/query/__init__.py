"""
Listing query composition shared by every catalog resource.
"""
