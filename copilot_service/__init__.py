"""
copilot_service
===============

Real-time trading co-pilot: for every open position a user tells us
about ("I'm in"), re-evaluate large opposing trades, book depth and the
short-term trend once per second and keep one advice label + reason per
session (NEUTRAL / WARN / TRIM / EXIT / HIGH_RISK).

Data-flow
---------
1. market_data.trade_stream pushes every print into `TradeFeedCache`
   (only prints above $500k survive, one per symbol).

2. `Advisor` runs on its own thread, reads `SessionStore` copies, calls
   the quote / depth / trend adapters with no lock held and writes the
   result back in one atomic swap.

3. Advice changes are published on the `copilot:advice` Redis channel;
   clients can also poll the REST snapshot.

`EntryPlanner` is the one-shot sibling: suggested entry, stop and target
for a prospective trade, with the stop parked behind big book walls.
"""
