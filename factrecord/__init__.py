# factrecord: Fact record reconciliation layer

"""
Maps Facts between their storage, search index and record/API shapes.

The binding-direction resolution in factrecord.resolution is the only
place that interprets stored Object binding directions.
"""
