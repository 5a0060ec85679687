# ROSBag Frame Sync - re-emit ROS bags as time-aligned XVIZ frames
#
# Package structure:
#   core/   - Foundation: constants, errors, config, shared models
#   bag/    - Bag access, schema & context scan, frame assembly, Bag session
#   xviz/   - Metadata builder, topic converters, metadata envelope
#   cli/    - CLI entry points (python -m cli.frames)
