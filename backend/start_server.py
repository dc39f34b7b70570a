#!/usr/bin/env python3
"""
Simple server startup script
"""
import uvicorn
import os
import sys

# Ensure we're in the right directory
os.chdir(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.getcwd())

if __name__ == "__main__":
    from gateway.config import HOST, PORT

    print(f"Starting gateway server on {HOST}:{PORT}")
    uvicorn.run(
        "main:app",
        host=HOST,
        port=PORT,
        log_level="info"
    )
