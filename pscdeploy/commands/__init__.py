"""pscdeploy CLI commands"""
