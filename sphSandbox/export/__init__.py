# -- Frame Export -- #

'''
JSON export of simulation frames.
'''

from sphSandbox.export.frameExporter import FrameExporter
