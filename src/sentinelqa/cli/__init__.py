"""SentinelQA command line interface."""
