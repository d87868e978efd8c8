"""
Field extractors. Each module exposes a DEFINITION (ExtractorDefinition)
building one FactRecord section; ExtractorRegistry discovers them.
"""
