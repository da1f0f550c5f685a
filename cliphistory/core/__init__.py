"""Core clipboard capture and storage"""
