"""
Application building blocks: services, commands, health checks, logging and configuration
"""
