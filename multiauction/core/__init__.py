"""Settlement engine core: pure functions, records, lifecycle, collaborators"""
