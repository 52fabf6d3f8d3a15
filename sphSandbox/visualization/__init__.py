# -- Visualization -- #

'''
Plotly figures and particle colouring for the tank.
'''
