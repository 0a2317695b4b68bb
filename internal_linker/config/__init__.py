"""Settings and heuristic data tables for Internal Linker"""
