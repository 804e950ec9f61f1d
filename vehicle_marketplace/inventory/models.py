from django.db import models
from django.contrib.auth import get_user_model

User = get_user_model()


class Car(models.Model):
    STATUS_CHOICES = [
        ('available', 'Available'),
        ('reserved', 'Reserved'),
        ('sold', 'Sold'),
        ('archived', 'Archived'),
    ]

    make = models.CharField(max_length=100, db_index=True)
    model = models.CharField(max_length=100, db_index=True)
    year = models.IntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2, default=0, db_index=True)
    mileage = models.IntegerField(default=0)
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='available')
    posted_by = models.ForeignKey(User, on_delete=models.CASCADE, related_name='posted_cars', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def title(self):
        return f"{self.year} {self.make} {self.model}"

    def __str__(self):
        return self.title

    class Meta:
        ordering = ['make', 'model', 'year']
        verbose_name = 'Car'
