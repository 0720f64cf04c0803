# auth.py
from flask import Blueprint, render_template, redirect, url_for, request, flash

from accounts import RegistrationError, register, authenticate, login_user, logout_user
from logging_setup import get_logger

LOG = get_logger("bookstore.auth")

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/register", methods=["GET", "POST"])
def register_view():
    if request.method == "POST":
        try:
            user = register(
                request.form.get("username", ""),
                request.form.get("email", ""),
                request.form.get("password", ""),
            )
        except RegistrationError as err:
            LOG.info("Registration error: %s", err)
            flash(f"Registration Error: {err}", "error")
            return redirect(url_for("auth.register_view"))
        login_user(user)
        flash("User Registered Successfully", "success")
        return redirect(url_for("shop.books"))
    return render_template("user/signup.html")

@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        user = authenticate(request.form.get("username", ""), request.form.get("password", ""))
        if user is None:
            flash("Password or username is incorrect", "error")
            return redirect(url_for("auth.login"))
        login_user(user)
        LOG.info("User %s logged in", user.username)
        flash("Welcome Back!", "success")
        return redirect(url_for("shop.books"))
    return render_template("user/login.html")

@auth_bp.route("/logout")
def logout():
    logout_user()
    flash("Logged Out Successfully", "success")
    return redirect(url_for("shop.books"))
