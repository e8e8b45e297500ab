"""Patients domain - patient profiles and medical records"""
