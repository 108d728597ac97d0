"""
Source License Service Django project.
"""
