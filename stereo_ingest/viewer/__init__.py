"""Rerun visualization of emitted stereo frames"""
