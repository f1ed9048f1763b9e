"""
Command-line demos (moroutines-demo).
"""
