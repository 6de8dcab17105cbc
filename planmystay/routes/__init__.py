"""
routes — route collections, mounted in a fixed order by create_app().
"""
