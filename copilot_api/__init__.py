"""
copilot_api
===========

Front door of the co-pilot process:

• Starts the advisor loop and the Redis trade-stream consumer.
• Publishes the session-control REST API used by the mobile app
  (start / stop / snapshot / plan entry / wall advice).
"""
