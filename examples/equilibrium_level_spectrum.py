# %%
import matplotlib.pyplot as plt
import numpy as np
import keldysh_gf.contour.time_grid as tgrid
import keldysh_gf.greens_function.contour_greens_function as cgf
import keldysh_gf.greens_function.observables as obs

contour_param = {'tmax': 10.0, 'npts_real': 101, 'beta': 5.0,
                 'npts_imag': 21}
level_param = {'e0': 0.5, 'gamma': 0.3, 'beta': contour_param['beta']}
params = {'contour': contour_param, 'level': level_param}

grid = tgrid.TimeGrid.from_parameters(params)

e0 = params['level']['e0']
gamma = params['level']['gamma']
n = 1.0 / (np.exp(params['level']['beta'] * e0) + 1.0)


def level_green(t1, t2):
    dt = t1.val.val - t2.val.val
    damping = np.exp(-gamma * np.abs(dt.real))
    return -1.0j * (tgrid.theta(t1, t2) - n) * np.exp(-1.0j * e0 * dt) \
        * damping


# ########################## Green's function ###########################
green = cgf.ContourGreen.from_kernel(level_green, grid, time_invariant=True)
print("occupation: ", obs.density(green).real.mean())

# ########################## spectral functions ##########################
ws = np.linspace(-3, 3, 121)
spectrum = obs.equilibrium_spectrum(green, ws)
plt.plot(ws, spectrum, label="equilibrium")
plt.plot(ws, (gamma / np.pi) / ((ws - e0)**2 + gamma**2), '--',
         label="Lorentzian")
plt.xlabel(r"$\omega$")
plt.ylabel(r"$A(\omega)$")
plt.legend()
plt.show()

ws_aux = np.linspace(-3, 3, 31)
aux = obs.aux_spectrum(green, ws_aux)
plt.plot(ws_aux, aux[:, -1].real)
plt.xlabel(r"$\omega$")
plt.ylabel(r"$A_{aux}(\omega, t_{max})$")
plt.show()
