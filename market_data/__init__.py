"""
market_data
===========

Everything the co-pilot knows about the exchange, behind three small
contracts:

    latest_price(symbol)          -> float           (raises Unavailable)
    depth(symbol, levels)         -> DepthSnapshot   (raises Unavailable)
    short_term_trend(symbol)      -> Trend           (never raises)

Modules
-------
models.py          – Trade / BookLevel / DepthSnapshot / Trend
binance_client.py  – Binance futures REST implementation of the first two
trend.py           – EMA-9/21 trend oracle on 1m candles (memoised)
trade_stream.py    – Redis pub/sub consumer that pushes large trades in
"""
