"""Appointments domain - booking, conflict checks, status workflow and listings"""
