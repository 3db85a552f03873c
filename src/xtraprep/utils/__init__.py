"""Supporting utilities: logging and notifications"""
