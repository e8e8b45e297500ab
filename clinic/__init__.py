"""Clinic appointment-booking API"""
