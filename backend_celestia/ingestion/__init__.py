"""
Ingestion from the upstream data service: paginated REST load and push channel.
"""
