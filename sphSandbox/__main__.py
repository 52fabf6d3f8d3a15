# -- sphSandbox CLI Entry -- #

'''
Allows running the tank as: python -m sphSandbox
'''

from sphSandbox.runner import main

main()
