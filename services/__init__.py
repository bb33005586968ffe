"""
Presentation and coordination services for the calculator front end
"""
