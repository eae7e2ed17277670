"""
The MODEL layer contains pure data structures and numerics.
It has NO knowledge of the maps or of any polygon state object.
It deals with Linear Algebra, Projective Geometry and Normalization.
"""
