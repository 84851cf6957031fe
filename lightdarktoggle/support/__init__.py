"""
Support object/functions that are independent from other parts of
lightdarktoggle.
"""
