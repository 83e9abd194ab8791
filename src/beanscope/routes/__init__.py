"""
HTTP routes for beanscope.
"""
