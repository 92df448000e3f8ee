"""
IRR Calculator

Cash-flow return engine and the HTTP service wrapped around it.
"""
