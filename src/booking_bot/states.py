from aiogram.fsm.state import State, StatesGroup


class AuthStates(StatesGroup):
    login_email = State()
    login_password = State()
    register_name = State()
    register_email = State()
    register_password = State()
    register_role = State()


class ClientStates(StatesGroup):
    dashboard = State()
    booking_time = State()     # service chosen, waiting for date/time
    booking_confirm = State()


class ProviderStates(StatesGroup):
    dashboard = State()
