# Conversion package for factrecord
"""
Converters between stored entities, search documents, existence
criteria and FactRecords.
"""
