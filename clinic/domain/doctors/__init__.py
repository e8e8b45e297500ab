"""Doctors domain - doctor directory, profiles and verification"""
