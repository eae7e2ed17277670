"""
The ANALYSIS layer holds the maps and the polygon state objects they drive.
"""
