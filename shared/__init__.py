"""
shared – tiny helpers imported by every co-pilot package
--------------------------------------------------------
Modules
-------
config.py         → loads `.env` once per process
logging.py        → consistent JSON/stdout logger
constants.py      → channel / key names, advice labels
errors.py         → InvalidInput / Unavailable / NotFound
redis_client.py   → lazy Redis singleton + heartbeat / publish helpers
utils.py          → symbol normalisation, clocks, small numerics
"""
