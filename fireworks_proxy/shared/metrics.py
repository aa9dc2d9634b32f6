#!/usr/bin/env python3
"""
Metrics definitions for the Fireworks chat proxy.
"""

import prometheus_client

PROMPT_TOKENS = prometheus_client.Counter('proxy_prompt_tokens_total', 'Prompt tokens reported by the upstream API')
COMPLETION_TOKENS = prometheus_client.Counter('proxy_completion_tokens_total', 'Completion tokens reported by the upstream API')
UPSTREAM_ERRORS = prometheus_client.Counter('proxy_upstream_errors_total', 'Non-success responses from the upstream API', ['status'])
STREAM_INTERRUPTIONS = prometheus_client.Counter('proxy_stream_interruptions_total', 'Streams cut short by a relay failure')
