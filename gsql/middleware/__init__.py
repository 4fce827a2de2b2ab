"""Middleware for statement execution: query logging, slow-query logging, safety checks and a pass-through cache hook."""