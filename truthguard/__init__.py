"""TruthGuard news verification service.

Link extraction, a three-stage AI verification pipeline (classify, search,
reclassify) and a Hindi voice summary of the most recent verdict, served over
FastAPI.
"""
