"""Stream source/sink coupling between line features and mesh cells.

Typical use::

    from gwflow.streams.recharge import StreamRecharge

    engine = StreamRecharge.from_file('streams.txt')
    found, results = engine.recharge_for_cell(top_face_xy)
"""
